"""AeonWise points, rank and skill-swap matching backend."""
