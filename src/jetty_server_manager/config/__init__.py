from .const import app_name_title, package_name
