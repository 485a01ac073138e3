"""kinderquiz: adaptive learning session engine for a child-facing quiz app."""
