"""Safe Sentinel - risk evaluation and autonomous co-signing for multisig wallets.

Pending transactions are pulled from the Safe transaction service, run
through a set of independent risk checks, and confirmed only while every
verdict stays below ``high`` risk. The first unsafe transaction stops the
batch for human review.
"""

__version__ = "0.4.0"
