"""Core of ocrlang: IR, errors, environment, registry and the language engine."""
