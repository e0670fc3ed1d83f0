"""
Services package: report parsing, claim reconciliation and payment adjustment.
"""
