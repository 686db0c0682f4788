"""Pure ingestion types, header resolution and validators."""
