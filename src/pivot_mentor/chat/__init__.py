"""Terminal front-end for the mentor chat."""
