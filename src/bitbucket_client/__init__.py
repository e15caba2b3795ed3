"""
Bitbucket Client

A command-oriented client for the Bitbucket Cloud REST API covering
authentication, team selection and repository lifecycle management.
"""

__version__ = "0.1.0"
__author__ = "Bitbucket Client Team"
__description__ = "Command-line client for Bitbucket Cloud repositories and teams"
