"""Run summary notifications."""
