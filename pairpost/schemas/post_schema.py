from pairpost.extensions.extensions import ma


class UserSummarySchema(ma.Schema):
    id = ma.Int()
    username = ma.Str()


class PostSchema(ma.Schema):
    id = ma.Int()
    title = ma.Str()
    caption = ma.Str(allow_none=True)
    image = ma.Str(allow_none=True)
    created_at = ma.DateTime()
    user = ma.Nested(UserSummarySchema)


class PartnerRequestSchema(ma.Schema):
    id = ma.Int()
    sender = ma.Nested(UserSummarySchema)
    created_at = ma.DateTime()


post_schema = PostSchema()
partner_request_schema = PartnerRequestSchema()
user_summary_schema = UserSummarySchema()
