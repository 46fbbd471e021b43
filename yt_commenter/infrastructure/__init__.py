"""Infrastructure layer: platform clients, persistence and background tasks"""
