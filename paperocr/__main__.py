"""
Module entry point for: python -m paperocr

Allows running the extractor directly as a module:
    python -m paperocr extract <pdf_path> [options]
    python -m paperocr parse-text <text_path> [options]
    python -m paperocr serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
