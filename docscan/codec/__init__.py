"""
Encoding of processed pages to JPEG bytes or single-page PDF documents.
"""

from docscan.codec.encoder import OutputFormat, encode, encode_jpeg, encode_pdf, save

__all__ = [
    "OutputFormat",
    "encode",
    "encode_jpeg",
    "encode_pdf",
    "save",
]
