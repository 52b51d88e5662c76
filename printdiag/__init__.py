"""PrintDiag - G-code troubleshooting submission client."""

__version__ = "0.1.0"
