from pdp_server.plugins import custom_attribute

PACKAGE = "permit.custom"


@custom_attribute(default=False)
def has_intersection(user, resource):
    return bool(set(user.get("tags", [])) & set(resource.get("tags", [])))


custom_attributes = [has_intersection]
