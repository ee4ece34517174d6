"""
Webex Meeting Bot Package.
Chat bot that detects meeting invitations, tracks meeting sessions and
posts transcripts and summaries back to Webex rooms.
"""

__version__ = "1.0.0"
