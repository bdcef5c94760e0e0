# ==============================================================================
# babyboss/main/forms.py
# ------------------------------------------------------------------------------
# Defines web forms using Flask-WTF for user input and validation.
# ==============================================================================

from datetime import date
from flask_wtf import FlaskForm
from wtforms import (StringField, FloatField, IntegerField, SubmitField, SelectField, PasswordField,
                     TextAreaField, BooleanField, DateField)
from wtforms.validators import DataRequired, NumberRange, InputRequired, EqualTo, Length, Optional

from babyboss.calculator.schema import LINES, SIZES, FLAVORS, BRANCHES
from babyboss.calculator.validator import MIN_PASSWORD_LENGTH

REQUIRED = "Trường này là bắt buộc."


class LoginForm(FlaskForm):
    """Form for employee login."""
    username = StringField('Tên đăng nhập', validators=[InputRequired(message="Vui lòng nhập tên đăng nhập.")])
    password = PasswordField('Mật khẩu', validators=[InputRequired(message="Vui lòng nhập mật khẩu.")])
    submit = SubmitField('Đăng nhập')


class ChangePasswordForm(FlaskForm):
    """Form for a logged-in user to change their password."""
    current_password = PasswordField('Mật khẩu hiện tại', validators=[InputRequired(message=REQUIRED)])
    new_password = PasswordField('Mật khẩu mới', validators=[
        InputRequired(message=REQUIRED),
        Length(min=MIN_PASSWORD_LENGTH, message="Mật khẩu mới quá ngắn.")
    ])
    confirm_password = PasswordField('Xác nhận mật khẩu mới', validators=[
        InputRequired(message=REQUIRED),
        EqualTo('new_password', message="Mật khẩu xác nhận không khớp.")
    ])
    submit = SubmitField('Đổi mật khẩu')


class CustomerForm(FlaskForm):
    """Form for adding or editing a customer. The address is re-entered part by part."""
    name = StringField('Tên khách hàng', validators=[DataRequired(message=REQUIRED)])
    company_name = StringField('Tên công ty / cửa hàng', validators=[DataRequired(message=REQUIRED)])
    position = StringField('Chức vụ', validators=[Optional()])
    phone = StringField('Số điện thoại', validators=[DataRequired(message=REQUIRED)])
    email = StringField('Email', validators=[Optional()])
    specific_address = StringField('Số nhà, tên đường', validators=[Optional()])
    ward = StringField('Phường/Xã', validators=[Optional()])
    district = StringField('Quận/Huyện', validators=[Optional()])
    province = StringField('Tỉnh/Thành phố', validators=[Optional()])
    rep_name = StringField('Người đại diện', validators=[Optional()])
    rep_phone = StringField('SĐT người đại diện', validators=[Optional()])
    rep_position = StringField('Chức vụ người đại diện', validators=[Optional()])
    notes = TextAreaField('Ghi chú', validators=[Optional()], render_kw={'rows': 3})
    sales_id = SelectField('Nhân viên phụ trách', choices=[], validate_choice=False, validators=[Optional()])
    submit = SubmitField('Lưu khách hàng')

    def to_record_fields(self):
        """Field values keyed the way customer records store them."""
        return {
            'name': self.name.data, 'companyName': self.company_name.data,
            'position': self.position.data, 'phone': self.phone.data, 'email': self.email.data,
            'specificAddress': self.specific_address.data, 'ward': self.ward.data,
            'district': self.district.data, 'province': self.province.data,
            'repName': self.rep_name.data, 'repPhone': self.rep_phone.data,
            'repPosition': self.rep_position.data, 'notes': self.notes.data,
            'salesId': self.sales_id.data or None,
        }


class CustomerFilterForm(FlaskForm):
    """Query-string filters on the customer list."""
    class Meta:
        csrf = False
    first_month = StringField('Tháng mua đầu tiên (YYYY-MM)', validators=[Optional()])
    last_month = StringField('Tháng mua gần nhất (YYYY-MM)', validators=[Optional()])
    province = StringField('Tỉnh/Thành phố', validators=[Optional()])


# --- Order Entry (multi-step) ---

class OrderDetailsForm(FlaskForm):
    """Step 1: customer, order date and invoice flag."""
    customer_id = SelectField('Khách hàng', choices=[], validators=[InputRequired(message="Vui lòng chọn khách hàng.")])
    order_date = DateField('Ngày đặt hàng', default=date.today, validators=[InputRequired(message=REQUIRED)])
    has_invoice = BooleanField('Xuất hoá đơn VAT')
    submit = SubmitField('Tiếp tục')


def _line_choices():
    return [(line, line) for line in LINES]


def _size_choices():
    return [(size, size) for size in SIZES]


def _flavor_choices():
    return [(flavor, flavor) for flavor in FLAVORS]


class IceCreamItemForm(FlaskForm):
    """Step 2: a purchased ice-cream line, priced from the catalogue."""
    line = SelectField('Dòng SP', choices=_line_choices())
    size = SelectField('Quy cách', choices=_size_choices(), default='500ml')
    flavor = SelectField('Hương vị', choices=_flavor_choices())
    quantity = IntegerField('Số lượng', default=1, validators=[InputRequired(message=REQUIRED), NumberRange(min=1)])
    submit = SubmitField('Thêm kem')


class ToppingItemForm(FlaskForm):
    """Step 2: a purchased topping or tool."""
    name = StringField('Tên sản phẩm', validators=[DataRequired(message=REQUIRED)])
    unit = StringField('ĐVT', validators=[DataRequired(message=REQUIRED)])
    quantity = IntegerField('Số lượng', default=1, validators=[InputRequired(message=REQUIRED), NumberRange(min=1)])
    price = FloatField('Đơn giá', default=0, validators=[InputRequired(message=REQUIRED), NumberRange(min=0)])
    submit = SubmitField('Thêm topping')


class DiscountItemForm(FlaskForm):
    """Step 2: free boxes given as a discount."""
    line = SelectField('Dòng SP', choices=_line_choices())
    size = SelectField('Quy cách', choices=_size_choices(), default='500ml')
    flavor = SelectField('Hương vị', choices=_flavor_choices())
    quantity = IntegerField('Số lượng', default=1, validators=[InputRequired(message=REQUIRED), NumberRange(min=1)])
    submit = SubmitField('Thêm chiết khấu')


class GiftItemForm(FlaskForm):
    """Step 2: a first-order gift."""
    name = StringField('Tên quà tặng', validators=[DataRequired(message=REQUIRED)])
    unit = StringField('ĐVT', validators=[DataRequired(message=REQUIRED)])
    quantity = IntegerField('Số lượng', default=1, validators=[InputRequired(message=REQUIRED), NumberRange(min=1)])
    price = FloatField('Giá trị', default=0, validators=[InputRequired(message=REQUIRED), NumberRange(min=0)])
    submit = SubmitField('Thêm quà tặng')


class ShippingForm(FlaskForm):
    """Step 2: third-party shipping and storage cost."""
    shipping_cost = FloatField('Chi phí vận chuyển', default=0, validators=[Optional(), NumberRange(min=0)])
    submit = SubmitField('Cập nhật phí vận chuyển')


class ReportFilterForm(FlaskForm):
    """Query-string filters shared by the dashboard, sales log and summary report."""
    class Meta:
        csrf = False
    period = SelectField('Thời gian', choices=[('week', 'Tuần này'), ('month', 'Tháng này'), ('year', 'Năm nay')],
                         default='month', validators=[Optional()])
    month = IntegerField('Tháng', validators=[Optional(), NumberRange(min=1, max=12)])
    year = IntegerField('Năm', validators=[Optional(), NumberRange(min=2000, max=2100)])
    branch = SelectField('Chi nhánh', choices=[('All', 'Toàn hệ thống')] + [(b, b) for b in BRANCHES],
                         default='All', validators=[Optional()])
    employee = SelectField('Nhân viên', choices=[('All', 'Tất cả nhân viên')], default='All',
                           validate_choice=False, validators=[Optional()])
