"""Usage statistics reporter.

ARCHITECTURAL INVARIANT: This package only PREPARES data. It never SENDS data.
The encoded payload is handed to the host's page-rendering layer, which embeds
it verbatim. No module in usagestats/ opens a network connection.
"""

__version__ = "0.4.0"
