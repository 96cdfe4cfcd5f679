"""Code Revolver sync: mirror Codex accounts and configuration over WebDAV."""

__version__ = "0.4.0"
