"""Team crests served from the bundled SVG set."""
