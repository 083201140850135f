"""Domain services: store, selector, runner, settlement clients, controller."""
