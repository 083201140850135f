"""Scheduler runtime: cron job, health probes and service entry point."""
