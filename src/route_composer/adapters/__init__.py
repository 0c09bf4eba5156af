"""
Adapter implementations for the route composer.

Adapters are concrete implementations of the port interfaces.
They handle the specifics of data sources, composition strategies and caching.
"""
