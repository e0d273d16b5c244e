"""Business services for lists, tasks, votes, profiles and notifications."""
