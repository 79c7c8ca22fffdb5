"""
Database Schema Reference
=========================

This file provides a quick reference for the clips table.
For the actual SQLAlchemy model, see: voiceset/db/models.py

"""

# ============================================================================
# CLIPS - One row per uploaded audio clip
# ============================================================================
#
# | Column                 | Type              | Constraints                    |
# |------------------------|-------------------|--------------------------------|
# | id                     | VARCHAR(36)       | PRIMARY KEY (UUID string)      |
# | filename               | VARCHAR(255)      | NOT NULL (sanitized basename)  |
# | storage_key            | TEXT              | NOT NULL, UNIQUE               |
# | content_type           | VARCHAR(100)      | NOT NULL                       |
# | size_bytes             | INTEGER           | NOT NULL                       |
# | normalized_storage_key | TEXT              | NULLABLE (set by processing)   |
# | duration_sec           | FLOAT             | NULLABLE (set by processing)   |
# | sample_rate            | INTEGER           | NULLABLE (set by processing)   |
# | channels               | INTEGER           | NULLABLE (set by processing)   |
# | silence_pct            | FLOAT             | NULLABLE (reserved)            |
# | snr_db                 | FLOAT             | NULLABLE (reserved)            |
# | hash                   | VARCHAR(64)       | NULLABLE (reserved, dedup)     |
# | transcript             | TEXT              | NULLABLE (reserved, ASR)       |
# | status                 | ENUM(ClipStatus)  | NOT NULL, INDEX                |
# | created_at             | TIMESTAMP(TZ)     | NOT NULL, DEFAULT now(), INDEX |
# | processed_at           | TIMESTAMP(TZ)     | NULLABLE                       |
#
# Enums:
#   ClipStatus: 'UPLOADED' | 'PROCESSED' | 'TRANSCRIBED'
#
# Status transitions (forward only, one step at a time):
#   UPLOADED ──process──► PROCESSED ──(ASR, not implemented)──► TRANSCRIBED
#
# Processing writes metrics with:
#   UPDATE clips SET ... WHERE id = :id AND status = 'UPLOADED'
# so a clip is processed at most once even under concurrent requests.


# ============================================================================
# OBJECT STORE LAYOUT
# ============================================================================
#
# | Key                              | Written by | Content                   |
# |----------------------------------|------------|---------------------------|
# | clips/{id}/original{ext}         | upload     | bytes exactly as uploaded |
# | clips/{id}/normalized.wav        | process    | mono 16 kHz PCM s16le WAV |


# ============================================================================
# INDEXES
# ============================================================================
#
# | Table | Index Name          | Columns    |
# |-------|---------------------|------------|
# | clips | ix_clips_status     | status     |
# | clips | ix_clips_created_at | created_at |
