"""
Room search and booking forms using Flask-WTF.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField, SelectField, TextAreaField, DateField
from wtforms.validators import DataRequired, Email, NumberRange, Optional, Length

from models.search import SortBy, SortOrder
from utils.messages import MESSAGES

PAYMENT_METHODS = [
    ('pay_at_hotel', 'Thanh toán tại khách sạn'),
    ('pay_later', 'Thanh toán sau'),
    ('momo', 'Ví MoMo'),
]

SORT_CHOICES = [
    (SortBy.RELEVANCE.value, 'Phù hợp nhất'),
    (SortBy.PRICE.value, 'Giá'),
    (SortBy.RATING.value, 'Đánh giá'),
    (SortBy.CREATED_AT.value, 'Mới nhất'),
]


class SearchForm(FlaskForm):
    """Room search form (GET, no CSRF token)."""

    class Meta:
        csrf = False

    q = StringField('Tìm kiếm', validators=[Optional(), Length(max=200)])
    room_type = StringField('Loại phòng', validators=[Optional()])
    min_price = IntegerField('Giá từ', validators=[Optional(), NumberRange(min=0)])
    max_price = IntegerField('Giá đến', validators=[Optional(), NumberRange(min=0)])
    guests = IntegerField('Số khách', validators=[Optional(), NumberRange(min=1)])
    check_in_date = DateField('Nhận phòng', validators=[Optional()])
    check_out_date = DateField('Trả phòng', validators=[Optional()])
    sort_by = SelectField('Sắp xếp', choices=SORT_CHOICES, default=SortBy.RELEVANCE.value)
    sort_order = SelectField('Thứ tự', choices=[
        (SortOrder.DESC.value, 'Giảm dần'),
        (SortOrder.ASC.value, 'Tăng dần'),
    ], default=SortOrder.DESC.value)


class BookingForm(FlaskForm):
    """Booking form for one room."""

    contact_name = StringField('Họ và tên', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    contact_email = StringField('Email', validators=[
        DataRequired(message=MESSAGES['field_required']),
        Email(message=MESSAGES['invalid_email'])
    ])

    contact_phone = StringField('Số điện thoại', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    check_in_date = StringField('Ngày nhận phòng', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    check_out_date = StringField('Ngày trả phòng', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    adults = IntegerField('Người lớn', default=1, validators=[
        NumberRange(min=1, message=MESSAGES['invalid_guests'])
    ])

    children = IntegerField('Trẻ em', default=0, validators=[
        Optional(),
        NumberRange(min=0)
    ])

    payment_method = SelectField('Phương thức thanh toán', choices=PAYMENT_METHODS,
                                 default='pay_at_hotel')

    special_requests = TextAreaField('Yêu cầu đặc biệt', validators=[
        Optional(),
        Length(max=1000)
    ])
