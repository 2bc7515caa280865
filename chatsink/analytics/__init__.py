"""Chatbot analytics topology and row builders."""
