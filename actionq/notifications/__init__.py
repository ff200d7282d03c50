"""Notifications - channel senders and delivery tracking"""
