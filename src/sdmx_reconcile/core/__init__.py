"""Core data model, enumerations and utilities shared by all subsystems."""
