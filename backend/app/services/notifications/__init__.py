"""Email and WhatsApp side effects of marketplace events"""
