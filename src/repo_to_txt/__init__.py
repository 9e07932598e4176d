"""repo_to_txt: flatten a remote GitHub repository into one text file or a ZIP archive."""

__version__ = "0.1.0"
