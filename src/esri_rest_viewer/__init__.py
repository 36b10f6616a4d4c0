"""ArcGIS REST Services viewer."""
