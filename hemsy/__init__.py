"""Hemsy - alterations shop management API"""
