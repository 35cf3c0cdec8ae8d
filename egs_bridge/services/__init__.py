"""Domain services: accounts, drives, notifications and reminders."""
