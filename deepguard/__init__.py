"""
DeepGuard backend
Deepfake detection API wrapping Sightengine (image/video) and Resemble AI (audio)
"""

__version__ = "1.0.0"
