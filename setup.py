from setuptools import setup, find_packages

setup(
    name="skillcred",
    version="0.1.0",
    description="Per-skill credibility scoring from challenges, peer endorsements and self-reported proficiency",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=["pydantic>=2.0", "httpx>=0.24"],
    extras_require={"dev": ["pytest>=7.0"]},
    entry_points={"console_scripts": ["skillcred-recalculate=skillcred.recalculate:main"]},
    python_requires=">=3.9",
    license="CC0-1.0",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "License :: CC0 1.0 Universal (CC0 1.0) Public Domain Dedication",
        "Programming Language :: Python :: 3",
    ],
    keywords="skills credibility scoring endorsements reputation",
)
