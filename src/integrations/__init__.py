"""
Clients for external services the Lambda delivers to.
"""
