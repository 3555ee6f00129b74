"""Bookings domain - customer appointment requests"""
