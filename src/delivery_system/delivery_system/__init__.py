"""Delivery System package.

Delivery back office organised by feature modules (orders, rates, planning,
milestones, sales, notifications, users, ...) with a thin Flask controller
layer over service and repository layers.
"""
