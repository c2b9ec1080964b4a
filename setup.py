from setuptools import setup, find_packages

setup(
    name="hrv_monitor",
    version="0.1.0",
    description="Fingertip PPG heart rate and HRV estimation from camera frames",
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "opencv-python>=4.8",
    ],
    extras_require={
        "dev": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "hrv-monitor=hrv_monitor.cli:main",
        ]
    },
)
