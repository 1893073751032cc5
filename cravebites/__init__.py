"""CraveBites restaurant ordering API"""
