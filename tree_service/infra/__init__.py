"""Infrastructure: logging and database engine/session wiring."""
