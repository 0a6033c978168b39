"""lockstep: version resolution and publishing for multi-channel releases."""
