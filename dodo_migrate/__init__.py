"""
Dodo Payments Discount Migration

A migration toolkit for copying discounts and coupons from other payment
platforms into Dodo Payments.

Supports:
- Source providers: LemonSqueezy, Stripe, Polar, Paddle, Gumroad, Razorpay,
  2Checkout, FastSpring
- Status and type filtering before anything is created
- Validation against the canonical discount model
- Preview, confirmation and dry runs
- A JSON report of every created or failed discount
"""

__version__ = "0.1.0"
