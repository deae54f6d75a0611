"""
Services module for the gym booking API

This module includes all service-related modules, which implement the business logic of the application.
Services interact with models, repositories and the external employee directory.
"""
