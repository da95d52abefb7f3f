"""State layer.

This package owns everything the engine remembers between events: the
latest telemetry per device, sticky SOS flags, the alert queue and its
selection, transient indicators, and pending incident offers.  All
mutation goes through the components defined here.
"""
