"""Worldschool learning pathways service.

Turns a trip and a learner profile into a day-by-day learning pathway and
materializes it into schedule blocks.
"""
