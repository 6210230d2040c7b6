"""Types, math and interfaces shared by the heliotrope packages."""
