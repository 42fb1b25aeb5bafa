"""Service layer: credential store, auth, admin and activity log."""
