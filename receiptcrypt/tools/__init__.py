"""
Command line tools for receiptcrypt.
"""
