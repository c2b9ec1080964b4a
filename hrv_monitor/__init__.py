"""
HRV Monitor — fingertip PPG heart rate and heart-rate variability.
Place your finger on the camera lens; the system samples the red/green
brightness of each frame, detects pulses as mean crossings, and derives
BPM and HRV metrics (RMSSD, pNN50, LF/HF) from the RR intervals.
"""

__version__ = "0.1.0"
__author__ = "hrv_monitor"
