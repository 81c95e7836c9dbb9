from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Integer, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

# SQLite only auto-increments INTEGER PRIMARY KEY columns.
SurrogateId = BigInteger().with_variant(Integer(), "sqlite")

# text[] / jsonb on PostgreSQL, plain JSON elsewhere (tests run on SQLite).
StringList = JSON().with_variant(ARRAY(Text()), "postgresql")
JsonDocument = JSON().with_variant(JSONB(), "postgresql")
