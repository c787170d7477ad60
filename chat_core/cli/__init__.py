"""Terminal front end: command dispatch, session loop, rendering."""
