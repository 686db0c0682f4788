"""
review_ingestion -- Spreadsheet ingestion of GL accounts.

Locates the real header row and data sheet inside loosely structured
.xlsx/.csv exports, maps aliased headers onto the canonical account schema,
reports row-level problems and hands accepted accounts to the review
kernel's account store.

Architecture:
    review_ingestion/ is a top-level package. Nothing in review_kernel/
    imports from ingestion.
"""
