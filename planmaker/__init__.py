"""planmaker — client core for the Software Planner and Spec Clarifier services."""
