"""
Essay Vault: Personal Essay Archiver

A one-shot crawler that discovers every essay on a single author's website,
skips the ones already saved, and renders the rest to PDF files organised
by publication year.
"""

__version__ = "1.0"
__author__ = "Essay Vault Project"
__description__ = "Personal Essay Archiver"
