"""
Domain layer: field classification, canonical definitions, layout view
model, registry, guards and the wizard.  Pure values and checks, no I/O.
"""
