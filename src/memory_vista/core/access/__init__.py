"""Role resolution, the edit permission gate and the editor request workflow."""
