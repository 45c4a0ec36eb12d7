"""
Supporting utilities: configuration, error handling and events.
"""
