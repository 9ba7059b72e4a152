"""sleeplog: sleep/wake event logging, sleep analytics and notification decisions."""
