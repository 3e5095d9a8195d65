# File: scribo/core/database/base.py

from sqlalchemy.orm import declarative_base

# The shared registry. Jobs, stage runs and transcripts all inherit from this.
Base = declarative_base()
