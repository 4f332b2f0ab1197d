"""Election services"""
