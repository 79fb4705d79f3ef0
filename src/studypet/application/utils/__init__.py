# Text helpers for generated content
