"""
MealMate - meal plan generation core.

Turns a user's nutrition targets and dietary constraints into a retried,
rate-limited sequence of recipe provider calls and assembles the results
into meal plans and shopping lists.
"""

__version__ = "2.0.0"
