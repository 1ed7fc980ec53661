"""Report assembly: surfaces, sections and the controller."""
