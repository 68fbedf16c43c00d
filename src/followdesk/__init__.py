"""FollowDesk - owner administration API for a social follow directory.

This package provides functionality for:
- Managing user records stored in Supabase Postgres
- Creating and removing directed follow relationships
- Uploading profile images to Supabase object storage
"""

__version__ = "1.0.0"
