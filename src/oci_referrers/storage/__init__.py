"""Registry client layer: references, media types, errors and registry implementations."""
