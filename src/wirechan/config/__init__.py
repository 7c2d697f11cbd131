"""
Layered configuration files for wirechan modules. See config.configure_module()
"""
