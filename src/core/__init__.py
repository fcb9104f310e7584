"""Core domain package for shopdesk.

Core holds the list-query and form-dialog engines without any HTTP or
Textual-specific code, keeping the console logic portable and testable.
"""
