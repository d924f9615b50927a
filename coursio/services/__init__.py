"""Scheduling and activity-ordering services used by the blueprints."""
