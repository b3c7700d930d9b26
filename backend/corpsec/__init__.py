"""Corporate secretarial records backend."""
