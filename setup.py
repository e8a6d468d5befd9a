from setuptools import setup, find_packages

setup(
    name="storefront-checkout",
    version="0.1.0",
    packages=find_packages(include=["storefront", "storefront.*", "checkout", "checkout.*"]),
    py_modules=["manage"],
    include_package_data=True,
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14",
        "stripe>=8.0",
        "python-dotenv>=1.0",
        "requests>=2.28",
        "whitenoise>=6.5",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-django>=4.5",
        ],
    },
    author="Wayne",
    author_email="support@techwithwayne.com",
    description="Stripe-hosted checkout and webhook order reconciliation for a Django storefront.",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    url="https://techwithwayne.com",
    license="MIT",
    classifiers=[
        "Framework :: Django",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License"
    ],
    python_requires='>=3.9',
)
