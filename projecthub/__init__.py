"""ProjectHub backend: milestones, task boards and realtime sync for college projects."""
