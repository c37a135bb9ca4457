"""Book catalog manager with duplicate-checked inserts."""
