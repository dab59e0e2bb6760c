"""
                Restaurant Menu

Multi-language restaurant menu service: public welcome and menu pages,
customer feedback, and an admin API for sections, categories, items,
branding and theme.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
